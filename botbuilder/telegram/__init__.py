"""
Telegram Module.

Webhook conversation engine for user-built menu bots. Every update is
handled statelessly: the pressed button's callback_data carries the
address of the menu item to show.

Structure:
    botbuilder/telegram/
    ├── __init__.py      # This file
    ├── menu/            # Menu tree, address resolution, keyboard rendering
    ├── dispatcher.py    # Update -> reply selection -> delivery -> recording
    ├── store.py         # Persistence interface used by the dispatcher
    ├── transport.py     # Outbound Bot API calls (aiogram)
    └── webhook.py       # FastAPI router for POST {webhook_path}/{token}
"""

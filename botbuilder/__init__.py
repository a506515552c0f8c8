"""
Menu Bot Builder.

- backend/: API, database, configuration, bot management services
- telegram/: Menu tree model, keyboard rendering, webhook conversation engine
"""

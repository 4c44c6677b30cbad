"""
Todo web application package.

Server-rendered todo list (create, search, edit, update, delete) stored in a
MongoDB collection. ``todo_app.main:app`` is the ASGI application;
``python -m todo_app`` serves it with uvicorn.
"""

__version__ = "0.1.0"

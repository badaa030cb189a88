from todo_api.models.todo import Todo
from todo_api.models.setting import Setting

__all__ = ["Todo", "Setting"]

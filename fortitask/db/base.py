from fortitask.db.base_class import Base

# import models so Base.metadata sees every table
from fortitask.models import course, enrollment, submission, user  # noqa: F401

__all__ = ["Base"]

from .database import Database
from .models import Metrics, Personality, Result, ResultRecord, Scores
from .repository import Repository

__all__ = ["Database", "Metrics", "Personality", "Result", "ResultRecord", "Scores", "Repository"]

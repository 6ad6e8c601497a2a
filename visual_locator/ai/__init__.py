"""AI utilities: prompt building, reply parsing and the OpenAI Oracle."""

from .response_parser import CoordinateParser, SuspicionReport, evaluate_coordinate_suspicion
from .prompt import CoordinateTeacher
from .openai_client import OpenAIOracle

__all__ = [
    "CoordinateParser",
    "CoordinateTeacher",
    "OpenAIOracle",
    "SuspicionReport",
    "evaluate_coordinate_suspicion",
]

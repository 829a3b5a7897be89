from .answers import ANSWER_SEARCH_COLUMNS, AnswerRepository
from .components import TripComponentRepository
from .errors import ErrorRepository
from .records import ClientRepository, TripRepository
from .surface import TripSurfaceRepository

__all__ = [
    "ANSWER_SEARCH_COLUMNS",
    "AnswerRepository",
    "ClientRepository",
    "ErrorRepository",
    "TripComponentRepository",
    "TripRepository",
    "TripSurfaceRepository",
]

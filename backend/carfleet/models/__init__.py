from carfleet.models.id_sequence import IdSequence
from carfleet.models.write_log import WriteLog

__all__ = [
    "IdSequence",
    "WriteLog",
]

from workout_tracker.models.stored_record import StoredRecord

__all__ = [
    "StoredRecord",
]

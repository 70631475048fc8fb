from visa_coach.persistence.sink import JsonFileSink, NullSink, PersistenceSink, ScoreHistoryStore

__all__ = ["JsonFileSink", "NullSink", "PersistenceSink", "ScoreHistoryStore"]

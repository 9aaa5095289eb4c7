from .ports import ActivityStore, InMemoryStore, RecordStore, SettingsStore

__all__ = ["ActivityStore", "InMemoryStore", "RecordStore", "SettingsStore"]

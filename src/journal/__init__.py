from journal.writer import JournalWriter

__all__ = ["JournalWriter"]

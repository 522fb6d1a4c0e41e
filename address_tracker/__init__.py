# Address Tracker: хранилище классифицированных адресов

__version__ = "0.1.0"

# Simple in-memory database; contents live only as long as the process
import threading

# Thread-safe in-memory storage
_storage = {}
_lock = threading.Lock()


def get(key: str):
    """Get value from in-memory storage by key"""
    with _lock:
        return _storage.get(key)


def set(key: str, data):
    """Store data in in-memory storage with key"""
    with _lock:
        _storage[key] = data
        return True


def delete(key: str):
    """Remove a key; returns whether it existed"""
    with _lock:
        return _storage.pop(key, None) is not None


def clear():
    """Clear all data from storage (useful for testing)"""
    with _lock:
        _storage.clear()

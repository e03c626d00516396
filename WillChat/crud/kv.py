from WillChat.models.kv_models import KeyValueEntry


# Get the stored value for a key, or None when the key is absent
def get_value(session, key):
    entry = session.get(KeyValueEntry, key)
    return entry.value if entry is not None else None


# Insert or overwrite the value for a key
def set_value(session, key, value):
    entry = session.get(KeyValueEntry, key)
    if entry is None:
        entry = KeyValueEntry(key = key, value = value)
        session.add(entry)
    else:
        entry.value = value
    session.flush()
    return entry


# Delete a key; returns True when something was removed
def delete_value(session, key):
    entry = session.get(KeyValueEntry, key)
    if entry is None:
        return False
    session.delete(entry)
    session.flush()
    return True

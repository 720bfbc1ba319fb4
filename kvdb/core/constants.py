"""
kvdb core constants.
"""

# Occurrence counters
ZERO_OCCURRENCES = 0
ONE_OCCURRENCE = 1

# Upper bound on snapshots held by the transaction stack
MAX_OPEN_TRANSACTIONS = 20

# Accepted shape of keys and values at the API boundary
KEY_VALUE_PATTERN = r"^[0-9A-Za-z]{1,10}$"

FIELD_MESSAGES = {
    "key": "The 'key' must have between 1 and 10 characters and contain only alphanumeric characters.",
    "value": "The 'value' must have between 1 and 10 characters and contain only alphanumeric characters.",
}

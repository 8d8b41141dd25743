## Well-known settings
# see https://gpoddernet.readthedocs.io/en/latest/api/reference/settings.html

# Flag to mark an episode as favorite; unset means not a favorite
FAV_FLAG = "is_favorite"

# the value stored for a set flag
TRUE_VALUE = "true"

GROUP_ROOM_ID = "room_{slug}" # random slug - public group chat
PRIVATE_ROOM_ID = "pm_{first}_{second}" # sorted connection ids - private chat
PRIVATE_ROOM_NAME = "Private Chat" # fixed label reported for every private room
DEFAULT_USER_NAME = "User-{prefix}" # first 4 chars of the connection id

# **Room identifiers**
# - `room_{slug}` = fresh for every create_room, never reused
# - `pm_{a}_{b}` = a <= b lexicographically, so {A, B} and {B, A} collide on purpose
# - connection ids are uuid4 strings (hex and dashes only), so `_` never appears inside one

# Centralized constants and defaults for the collaboration board

VERSION = "v1"

# Creator label attached to layouts produced by the suggestion source
AI_CREATOR = "DormCraft AI"

# Accepted layouts are numbered L1, L2, ... per board
LAYOUT_ID_PREFIX = "L"
PENDING_LAYOUT_ID = "PENDING"

# Suggestion source defaults
SUGGEST_MODEL_DEFAULT = "gpt-4o-mini"
SUGGEST_TIMEOUT_S = 60.0
SUGGEST_TEMPERATURE = 0.2

# Share links
SHARE_BASE_URL_DEFAULT = "https://dormcraft.mit.edu"

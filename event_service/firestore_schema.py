# event_service/firestore_schema.py
# Field names are shared with documents written by the web client.
# Renaming any of these breaks compatibility with existing data.

# --- User Document Fields (users/{uid}) ---
# Document ID is the Firebase Authentication uid.
USER_CHECKIN_PROGRAM_IDS_FIELD = "checkinProgramIds"  # Array of program ids, set semantics
USER_LIKES_FIELD = "likes"  # Array of photo ids, set semantics
USER_CREATED_AT_FIELD = "createdAt"
USER_REWARD_FIELD = "reward"  # Number
USER_PREV_REWARD_FIELD = "prevReward"  # Number, balance before the last adjustment
USER_CURRENT_PLACE_FIELD = "currentPlace"
USER_NOTIFICATION_FIELD = "notification"  # Map
USER_SETTINGS_FIELD = "settings"  # Map
USER_DEV_FIELD = "dev"  # Boolean
USER_UNIVERSITY_FIELD = "university"  # Boolean
USER_FORM_FIELD = "form"  # Map of form number -> completed flag

# Sub-fields for USER_NOTIFICATION_FIELD:
NOTIFICATION_IS_NOTIFY = "isNotify"
NOTIFICATION_ID = "id"
NOTIFICATION_CREATED_AT = "createdAt"

# Sub-fields for USER_SETTINGS_FIELD:
SETTINGS_NOTIFICATION = "notification"
SETTINGS_NICKNAME = "nickName"
SETTINGS_MODE_OF_TRANSPORTATION = "modeOfTransportation"
SETTINGS_TIME_TABLE = "timeTable"  # Map "0".."5" -> [bool, bool, bool]

TIME_TABLE_DAYS = 6
TIME_TABLE_SLOTS_PER_DAY = 3
FORM_IDS = ("1", "2")
INITIAL_CURRENT_PLACE = "none"

# --- Photo Document Fields (photos/{id}) ---
PHOTO_UID_FIELD = "uid"
PHOTO_URL_FIELD = "url"
PHOTO_PLACE_FIELD = "place"
PHOTO_FAV_FIELD = "fav"
PHOTO_DATE_FIELD = "date"

# --- Program Document Fields (program/{id}) ---
PROGRAM_IS_OPEN_FIELD = "isOpen"

# --- Log Document Fields (logs/{auto-id}) ---
LOG_TITLE_FIELD = "title"
LOG_PLACE_FIELD = "place"
LOG_STATE_FIELD = "state"
LOG_DATE_FIELD = "date"
LOG_UID_FIELD = "uid"

# --- Signature Document Fields (signature/{auto-id}) ---
SIGNATURE_SIGN_FIELD = "sign"
SIGNATURE_DATE_FIELD = "date"

# --- Mode Document Fields (mode/mode) ---
MODE_DEV_FIELD = "dev"

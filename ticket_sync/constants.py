"""
Shared constants for Ticket Sync.
"""

# Container archives that get expanded after download
ARCHIVE_EXTENSIONS = {".zip"}

# Ticket statuses that count as finished for scrubbing
CLOSED_STATUSES = {"solved", "closed"}

# Suffix for in-flight downloads (sibling of the final path)
TEMP_SUFFIX = ".temp"

# Ticket ids per status lookup request
STATUS_BATCH_SIZE = 100

# Workspace store keys
WORKSPACE_DATA_KEY = "ticketData"
LAST_EMAIL_KEY = "lastEmailUsed"
LAST_ASSIGNEE_KEY = "lastIDUsed"
LAST_FOLDER_KEY = "lastFolderPath"

"""Project-wide named constants.

The wire names and the agent address are fixed by the agent's HTTP
contract; the messages are what the presentation layer shows for each
failure class.
"""

DEFAULT_AGENT_URL: str = "http://localhost:8080"
UPLOAD_PATH: str = "/upload"
HEALTH_PATH: str = "/health"
OPEN_PATH: str = "/open"

# Multipart field names expected by the agent's upload handler
FILE_FIELD: str = "file"
OPEN_NOW_FIELD: str = "openNow"

# Size of the chunks the request body is streamed in (progress granularity)
CHUNK_SIZE: int = 64 * 1024

NO_FILE_MESSAGE: str = "Please select a file first"
NETWORK_ERROR_MESSAGE: str = "Network error occurred"
PARSE_ERROR_MESSAGE: str = "Failed to parse response"
APPLICATION_DEFAULT_MESSAGE: str = "Upload failed"
ABORTED_MESSAGE: str = "Upload aborted"

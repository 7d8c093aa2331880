"""Constants for HTTP status messages.

Transport adapters use these instead of exception text so that internal detail
never reaches the platform in an error response.
"""

# 4xx Client Errors
HTTP_400_BAD_REQUEST_MESSAGE = "Bad Request"
HTTP_401_UNAUTHORIZED_MESSAGE = "Unauthorized"
HTTP_404_NOT_FOUND_MESSAGE = "Not Found"
HTTP_405_METHOD_NOT_ALLOWED_MESSAGE = "Method Not Allowed"
HTTP_422_UNPROCESSABLE_ENTITY_MESSAGE = "Unprocessable Entity"

# 5xx Server Errors
HTTP_500_INTERNAL_SERVER_ERROR_MESSAGE = "Internal Server Error"

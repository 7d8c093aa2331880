"""Header names and reserved keys shared by the transport and the domain."""

HEADER_SIGNATURE = "X-Slack-Signature"
HEADER_TIMESTAMP = "X-Slack-Request-Timestamp"
SLACK_HEADER_PREFIX = "x-slack"

SIGNATURE_VERSION = "v0"
SIGNATURE_PREFIX = SIGNATURE_VERSION + "="

DEFAULT_MAX_CLOCK_SKEW_SECONDS = 60 * 5

# Query parameter used by the multi-tenant server to pick an app.
APP_ID_QUERY_PARAM = "_app"

"""Default configuration file content."""

DEFAULT_CONFIG_CONTENT = """\
# showtape configuration
version: "1"
log_level: INFO

# Storage account and container receiving the episodes
account: my-account
container: morning-show

# Series to record
series_name: Morning Show
source_url: https://radio.example.com/live.mp3
runtime_seconds: 3600
media_type: mp3
retention_count: 10

# Webhook receiving Start/Finish events
webhook_url: https://hooks.example.com/showtape
notify_start: true

# Storage identity: managed_identity or service_principal
auth:
  type: managed_identity
  # client_id: 00000000-0000-0000-0000-000000000000
# auth:
#   type: service_principal
#   tenant_id: my-tenant
#   client_id: my-client
#   client_secret_env: SHOWTAPE_CLIENT_SECRET

retry:
  max_retries: 5
  initial_delay_seconds: 3
  backoff_increment_seconds: 0

capture:
  interval_seconds: 1
  stop_grace_seconds: 15
  connect_timeout_seconds: 10
  read_timeout_seconds: 10
"""


def get_default_config_content() -> str:
    return DEFAULT_CONFIG_CONTENT

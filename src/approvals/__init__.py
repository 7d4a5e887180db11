"""Deal approval service: single-use approval tokens, audit trail, notifications, and webhooks."""

"""Service integrations: durable and ephemeral stores, and outbound mail."""

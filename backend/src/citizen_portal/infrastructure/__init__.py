"""Infrastructure adapters: Redis, object storage, content sniffing, persistence."""

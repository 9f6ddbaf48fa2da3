"""Model chat backend: catalog, conversation store and the message send pipeline."""

"""Migration services: phases, writer, resolver, audit, cleanup, backup."""

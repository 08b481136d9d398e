"""Adapters connecting the health dashboard core to concrete record stores."""

"""HTTP surface: health probes and the landlord and tenant routers."""

"""Read models over the platform database, backing the directory contracts."""

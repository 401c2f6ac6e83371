"""HTTP control server for probescan."""

"""HTTP boundary: dependencies, converters and routers."""

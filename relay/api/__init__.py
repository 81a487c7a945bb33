"""HTTP transport: schemas, dependencies and versioned routers."""

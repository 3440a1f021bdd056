# Web module - HTTP status surface

"""Device inventory propagation.

Walks every tenant store of the device-auth database in fixed-size pages and
pushes identity attributes and lifecycle statuses into the inventory service,
continuing past per-record and per-store failures. Supports dry runs.
"""

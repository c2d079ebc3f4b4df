"""Expansion of @gen_crud model classes into CRUD forwarders and actor peers."""

"""
dbsync - copy a MySQL database from a remote server to a local server.

The byte moving is delegated to external toolchains:
- mysqldump / mysql client
- mydumper / myloader through a container runtime
- MySQL Shell (mysqlsh util dump-schemas / load-dump)

Modules:
- config: Settings loaded from environment and .env files
- models: Endpoints, database descriptors, sync results
- services: Inspector, process runner, progress, orchestration
- engines: The three dump/restore strategies
- utils: Validators, formatters, tool path resolution
- exceptions: Custom exceptions
"""

__version__ = "0.1.0"

"""
Edge request router for worker-manager.

- app.main: FastAPI service, authentication gate and dispatch boundary
- app.routing: explicit route table and resource families
- app.handlers: one module per resource family
- app.adapters: vendor API, metadata store and backup object store
- app.domain: worker cloning and job recording
"""

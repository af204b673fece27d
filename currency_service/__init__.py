"""Currency rates service: FX ingest, storage and pivot-currency conversion."""

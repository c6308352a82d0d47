# Infrastructure Adapters Package

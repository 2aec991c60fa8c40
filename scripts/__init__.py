# Operational scripts

"""Domain packages for payment components."""

"""
Wallet provisioning, payment and transaction inspection.
"""

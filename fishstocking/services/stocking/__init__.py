"""
Fish stocking lifecycle engine
Status derivation, batch reconciliation and the operation validator
"""

"""
NHL schedule polling, normalization and rotation.
"""

"""
Conduits - bi-directional byte channels to a single remote peer.
"""

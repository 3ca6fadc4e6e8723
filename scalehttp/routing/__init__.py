"""Routing keys, the immutable routing memory and the live routing table."""
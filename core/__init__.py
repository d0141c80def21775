"""Bit-packing codec, arithmetic substrate and service components."""

"""Pure domain primitives for the inventory kernel.  Zero I/O."""

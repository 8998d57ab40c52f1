"""Online and locally-dynamic graph coloring on partially filled grids."""

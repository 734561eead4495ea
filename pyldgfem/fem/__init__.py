"""Reference elements, geometry maps, tabulated values and the lifting space."""

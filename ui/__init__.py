"""Web surfaces for Vispro."""

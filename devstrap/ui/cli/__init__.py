"""CLI sub-commands registered on the root ``devstrap`` group."""

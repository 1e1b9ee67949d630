"""Find evacuation shelters near you and download a static map of them."""

__version__ = "0.1.0"

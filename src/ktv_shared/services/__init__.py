"""Domain services. Each module owns one area of the venue."""

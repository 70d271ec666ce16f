"""Small text helpers shared by services."""

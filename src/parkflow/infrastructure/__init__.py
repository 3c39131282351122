"""Infrastructure layer: clocks, displays, payments, messaging and storage"""

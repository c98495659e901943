"""Stateless quiz, prize wheel and promo code service."""

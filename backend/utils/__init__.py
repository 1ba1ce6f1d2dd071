from .money import quantize_amount, to_decimal

__all__ = ['quantize_amount', 'to_decimal']

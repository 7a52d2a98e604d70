'''Exchangeable components of the election, such as divisor functions.'''

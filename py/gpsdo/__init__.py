'''Si53xx divider planning for a GPS disciplined oscillator.'''

from meshflux.utils.loaders import load_permittivity

__all__ = ['load_permittivity']

from . import contact, consigned

"""Audio and control module types that a patch can load."""
# Rewritten by the image build (see Dockerfile, VERSION build arg).
__version__ = "dev"

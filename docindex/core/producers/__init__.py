from .fragment import DEFAULT_CHANNEL, FragmentProducer

__all__ = ["DEFAULT_CHANNEL", "FragmentProducer"]

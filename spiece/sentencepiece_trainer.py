from . import proto
from .bpe_trainer import BPETrainer
from .config import normalizer_spec_from_dict, trainer_spec_from_dict
from .model import SentencePieceModel
from .unigram_trainer import UnigramTrainer
from .word_trainer import CharTrainer, WordTrainer

TRAINERS = {
    proto.UNIGRAM: UnigramTrainer,
    proto.BPE: BPETrainer,
    proto.WORD: WordTrainer,
    proto.CHAR: CharTrainer,
}


class SentencePieceTrainer(object):

    @staticmethod
    def train(sentences=None, trainer_spec=None, normalizer_spec=None, verbose=False,
              seed=290956, **kwargs) -> SentencePieceModel:
        """Train a model of trainer_spec.model_type.

        `sentences` is an in-memory corpus (strings, bytes or (text, count)
        pairs); without it trainer_spec.input is read. Keyword arguments
        override fields of either spec, `normalization_rule_name` selects the
        normalization rule when no normalizer_spec is given.
        """
        normalizer_fields = proto.NormalizerSpec.DESCRIPTOR.fields_by_name
        trainer_kwargs, normalizer_kwargs = {}, {}
        for key, value in kwargs.items():
            if key == 'normalization_rule_name':
                normalizer_kwargs['name'] = value
            elif key in normalizer_fields:
                normalizer_kwargs[key] = value
            else:
                trainer_kwargs[key] = value

        trainer_spec = trainer_spec_from_dict(trainer_kwargs, base=trainer_spec)
        normalizer_spec = normalizer_spec_from_dict(normalizer_kwargs, base=normalizer_spec)

        trainer_cls = TRAINERS[trainer_spec.model_type]
        trainer = trainer_cls(trainer_spec, normalizer_spec, seed=seed, verbose=verbose)
        return trainer.train(sentences)

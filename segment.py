import pathlib
from argparse import ArgumentParser

import tqdm

from spiece.model import SentencePieceModel
from spiece.segmenter import Segmenter
from spiece.utils import ensure_path


def parseArgs():
    parser = ArgumentParser()

    parser.add_argument('model', type=pathlib.Path,
                        help='Path to the trained model, or its prefix')
    parser.add_argument('dataset', type=pathlib.Path,
                        help='Text file to segment, one sentence per line (ids per line with --decode)')
    parser.add_argument('output', type=pathlib.Path,
                        help='Output file')
    parser.add_argument('--output_format', type=str, default='piece', choices=['piece', 'id'],
                        help='Write pieces or piece ids when encoding. Default=piece')
    parser.add_argument('--decode', action='store_true',
                        help='Turn lines of space separated ids back into text')
    parser.add_argument('--match_control_symbols', action='store_true',
                        help='Match control symbols written in the text')
    parser.add_argument('--overwrite', action='store_true',
                        help='Overwrite existing output')
    return parser.parse_args()


def encode_lines(lines, segmenter, output_format):
    out_type = str if output_format == 'piece' else int
    for line in lines:
        yield ' '.join(str(p) for p in segmenter.encode(line, out_type=out_type))


def decode_lines(lines, model):
    for line in lines:
        yield model.decode([int(i) for i in line.split()])


def run(args):
    assert not ensure_path(args.output) or args.overwrite, \
        f'Output found at {args.output}. If you want to overwrite, rerun with --overwrite.'

    print('Loading model...')
    model = SentencePieceModel.load(args.model)
    print(model)

    with open(args.dataset, 'r', encoding='utf8') as dataset:
        lines = [line.rstrip('\n') for line in dataset]

    if args.decode:
        print('Decoding...')
        results = decode_lines(tqdm.tqdm(lines), model)
    else:
        print('Segmenting...')
        segmenter = Segmenter(model, match_control_symbols=args.match_control_symbols)
        results = encode_lines(tqdm.tqdm(lines), segmenter, args.output_format)

    with open(args.output, 'w', encoding='utf8') as output:
        for result in results:
            output.write(result + '\n')
    print(f'Wrote {len(lines)} lines to {args.output}')


if __name__ == "__main__":
    args = parseArgs()
    run(args)

__docformat__ = "restructuredtext"
__all__ = ["OnnxFrontend", "convert", "convert_buffers", "convert_files", "convert_models"]

from collections.abc import Sequence
from pathlib import Path

import onnx

from onnxfront.converters import ConverterRegistry
from onnxfront.normalize.normalize import ModelSource
from onnxfront.options import ConvertOptions


class OnnxFrontend:
    def __init__(
        self,
        verbose: bool = False,
        options: ConvertOptions | None = None,
        registry: ConverterRegistry | None = None,
    ):
        self.verbose = verbose
        self.options = options if options is not None else ConvertOptions()
        self.registry = registry

    def convert(self, source: ModelSource):
        """Convert one ONNX model into an IR function.

        :param source: Path to an ONNX file, serialized model bytes, or a ModelProto
        :return: :class:`ConversionResult` holding the function or the diagnostics
        """
        # Stage 1: Normalize ONNX model
        model = self.preprocess(
            source,
            target_opset=self.options.target_opset,
            infer_shapes=self.options.infer_shapes,
            check_model=self.options.check_model,
            strict_check=self.options.strict_check,
        )
        if self.verbose:
            print(f"Loaded model: {model.graph.name or 'main'} ({len(model.graph.node)} nodes)")

        # Stage 2: Operator report
        if self.options.report_path is not None:
            from onnxfront.parse import write_csv_report

            with open(self.options.report_path, "w", newline="", encoding="utf-8") as stream:
                write_csv_report(model, stream, self.registry)
            if self.verbose:
                print(f"Saved operator report: {self.options.report_path}")

        # Stage 3: Convert graph to IR
        from onnxfront.parse import GraphConverter

        converter = GraphConverter(registry=self.registry, options=self.options)
        result = converter.convert_model(model)

        if self.verbose:
            if result.success:
                print(f"Converted: {result.function.name}")
            else:
                print(f"Conversion failed with {len(result.diagnostics)} error(s)")
                print(result.format_diagnostics())
        return result

    def convert_files(self, file_list: Sequence[str | Path]):
        """Convert the model stored in the first file of ``file_list``.

        External tensor data is resolved by ``onnx.load`` relative to that file.

        :param file_list: Model file paths
        :raises ValueError: If ``file_list`` is empty
        """
        if not file_list:
            raise ValueError("convert_files requires at least one file")
        return self.convert(Path(file_list[0]))

    def convert_buffers(self, buffers: Sequence[bytes]):
        """Convert the serialized model held by the first buffer.

        :raises ValueError: If ``buffers`` is empty
        """
        if not buffers:
            raise ValueError("convert_buffers requires at least one buffer")
        return self.convert(bytes(buffers[0]))

    def convert_models(self, model_defs: Sequence[onnx.ModelProto]):
        """Convert the first already-decoded model.

        :raises ValueError: If ``model_defs`` is empty
        """
        if not model_defs:
            raise ValueError("convert_models requires at least one model")
        return self.convert(model_defs[0])

    @staticmethod
    def preprocess(
        source: ModelSource,
        target_opset: int | None = None,
        infer_shapes: bool = True,
        check_model: bool = True,
        clear_docstrings: bool = True,
        strict_check: bool = False,
    ) -> onnx.ModelProto:
        """Load and preprocess ONNX model.

        Preprocessing steps:
        1. Load model from a path, a buffer, or a copy of a ModelProto
        2. Validate with ONNX checker (if enabled; failures warn unless strict)
        3. Convert to target opset version (if given)
        4. Run shape inference (if enabled)
        5. Clear docstrings (if enabled)

        Recommended opset: 13-21

        :param source: Path, serialized bytes, or ModelProto
        :param target_opset: Target opset version (None = keep original)
        :param infer_shapes: Run ONNX shape inference (default: True)
        :param check_model: Validate with onnx.checker (default: True)
        :param clear_docstrings: Clear docstrings (default: True)
        :param strict_check: Raise instead of warning on checker failure (default: False)
        :return: Preprocessed model
        """
        from onnxfront.normalize import load_and_preprocess_onnx_model

        return load_and_preprocess_onnx_model(
            source,
            target_opset=target_opset,
            infer_shapes=infer_shapes,
            check_model=check_model,
            clear_docstrings=clear_docstrings,
            strict_check=strict_check,
        )


def convert(source: ModelSource, options: ConvertOptions | None = None):
    return OnnxFrontend(options=options).convert(source)


def convert_files(file_list: Sequence[str | Path], options: ConvertOptions | None = None):
    return OnnxFrontend(options=options).convert_files(file_list)


def convert_buffers(buffers: Sequence[bytes], options: ConvertOptions | None = None):
    return OnnxFrontend(options=options).convert_buffers(buffers)


def convert_models(model_defs: Sequence[onnx.ModelProto], options: ConvertOptions | None = None):
    return OnnxFrontend(options=options).convert_models(model_defs)

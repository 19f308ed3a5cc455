#!/usr/bin/env python3
"""
Script para exportar el clasificador de poses a ONNX
=====================================================

Exporta un modelo de clasificación entrenado con Ultralytics (.pt) a ONNX
para que el juego lo cargue con LocalClassificationModel.

Uso:
    python scripts/export_pose_model.py runs/classify/train/weights/best.pt
    python scripts/export_pose_model.py best.pt --imgsz 224 --name pose-cls

El modelo se guarda en: models/<name>-<imgsz>.onnx
"""

import argparse
import sys
from pathlib import Path

from ultralytics import YOLO


MODELS_DIR = Path("models")

# Configuración de exportación ONNX
EXPORT_CONFIG = {
    "format": "onnx",
    "half": False,  # FP32 para compatibilidad
    "simplify": True,  # Simplificar grafo ONNX
    "dynamic": False,  # Tamaño fijo para mejor performance
    "opset": 12,
}


def export_model(weights: Path, imgsz: int, name: str) -> Path:
    """
    Exporta el clasificador a ONNX y lo mueve a models/.

    Returns:
        Path al modelo ONNX exportado
    """
    print(f"\n{'='*70}")
    print(f"Exportando {weights.name} (imgsz={imgsz})")
    print(f"{'='*70}")

    model = YOLO(str(weights), task='classify')
    print(f"   Clases: {list(model.names.values())}")

    print("⚙️  Exportando a ONNX...")
    exported_path = Path(model.export(imgsz=imgsz, **EXPORT_CONFIG))

    MODELS_DIR.mkdir(exist_ok=True)
    output_path = MODELS_DIR / f"{name}-{imgsz}.onnx"
    exported_path.replace(output_path)
    print(f"✅ Modelo guardado en: {output_path}")

    return output_path


def validate_model(model_path: Path, imgsz: int) -> bool:
    """Valida que el modelo exportado cargue como clasificador de poses"""
    from catcher.inference.models import LocalClassificationModel

    print(f"\n🔍 Validando {model_path.name}...")
    try:
        classifier = LocalClassificationModel(str(model_path), imgsz=imgsz)
    except (FileNotFoundError, ValueError) as e:
        print(f"❌ Error validando modelo: {e}")
        return False

    print("✅ Modelo válido")
    print(f"   Labels: {classifier.labels}")
    print(f"   Tamaño: {model_path.stat().st_size / 1024 / 1024:.2f} MB")
    classifier.close()
    return True


def main(argv=None):
    parser = argparse.ArgumentParser(description="Exporta el clasificador de poses a ONNX")
    parser.add_argument("weights", type=Path, help="Pesos .pt del clasificador")
    parser.add_argument("--imgsz", type=int, default=224, help="Tamaño de imagen (default: 224)")
    parser.add_argument("--name", default="pose-cls", help="Prefijo del archivo (default: pose-cls)")
    args = parser.parse_args(argv)

    if not args.weights.exists():
        print(f"❌ No existe: {args.weights}")
        return 1
    if args.imgsz % 32 != 0:
        print(f"❌ imgsz debe ser múltiplo de 32 (recibido: {args.imgsz})")
        return 1

    print("🚀 Exportador del clasificador de poses")
    output_path = export_model(args.weights, args.imgsz, args.name)

    if not validate_model(output_path, args.imgsz):
        return 1

    print("\n💡 Uso:")
    print("   Configurar en config/catcher/config.yaml:")
    print("      model:")
    print(f"        path: '{output_path}'")
    print(f"        imgsz: {args.imgsz}")
    return 0


if __name__ == "__main__":
    sys.exit(main())

"""
ml_models — scan image classifier.

Components:
  image_encoder — bytes → (1, 3, S, S) float tensor
  predictor     — ClassifierHandle: background TorchScript load + predict()
"""

from .bedrock_embedding import BedrockEmbeddingClient

__all__ = ["BedrockEmbeddingClient"]

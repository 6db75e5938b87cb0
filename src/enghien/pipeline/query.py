"""Answer pipeline — question → retrieve → assemble context → generate."""

from __future__ import annotations

import logging

from enghien.embeddings.base import EmbeddingProvider
from enghien.llm.base import LLMProvider
from enghien.pipeline.context import assemble_context, dedupe_sources
from enghien.pipeline.prompts import SYSTEM_PROMPT, build_user_message
from enghien.pipeline.schemas import RAGResponse
from enghien.retrieval.retriever import Retriever
from enghien.vectorstore.base import VectorStore
from enghien.vectorstore.schemas import RetrievalFilter

logger = logging.getLogger(__name__)

CHAT_THRESHOLD = 0.35
CHAT_COUNT = 8


class QueryPipeline:
    """Orchestrates question → retrieve → generate.

    The generator is always called: with no matching passage it receives
    the explicit "nothing found" marker as context and is instructed to
    say so.
    """

    def __init__(
        self,
        embedding_provider: EmbeddingProvider,
        vector_store: VectorStore,
        llm_provider: LLMProvider,
        threshold: float = CHAT_THRESHOLD,
        count: int = CHAT_COUNT,
        system_prompt: str = SYSTEM_PROMPT,
    ):
        self.retriever = Retriever(
            embedding_provider=embedding_provider,
            vector_store=vector_store,
        )
        self.llm_provider = llm_provider
        self.threshold = threshold
        self.count = count
        self.system_prompt = system_prompt

    def answer(
        self,
        question: str,
        metadata_filter: RetrievalFilter | None = None,
    ) -> RAGResponse:
        """Answer *question* from retrieved extracts.

        Args:
            question: The user's question.
            metadata_filter: Optional book/chapter restriction.

        Returns:
            A ``RAGResponse`` with the answer and deduplicated sources.
        """
        results = self.retriever.search(
            question,
            threshold=self.threshold,
            count=self.count,
            metadata_filter=metadata_filter,
        )

        context = assemble_context(results)
        answer = self.llm_provider.generate(
            build_user_message(question, context),
            system=self.system_prompt,
        )

        logger.info("Question answered from %d extracts", len(results))

        return RAGResponse(
            question=question,
            answer=answer,
            sources=dedupe_sources(results),
            context=context,
            model=getattr(self.llm_provider, "model", "unknown"),
            retrieval_count=len(results),
        )

"""Server module generation: the service trait and the request dispatcher."""

from __future__ import annotations

from typing import Dict

from ..config import GenerationOptions
from ..docs import proto_comment_to_rust_doc, rust_doc_line
from ..model import Method, Service, StreamingShape, method_path
from ..naming import camel_to_snake_case
from ..template import Printer
from ..type_paths import rs_type_path
from .client import CODEC_NAME

# The trait and the dispatcher live in the server module.
SERVER_DEPTH = 1

UNARY_TRAIT_FORMAT = r"""
    async fn $ident$(
        &self,
        request: tonic::Request<$request$>,
    ) -> std::result::Result<tonic::Response<$response$>, tonic::Status> {
        Err(tonic::Status::unimplemented("Not yet implemented"))
    }
    """

SERVER_STREAMING_TRAIT_FORMAT = r"""
    async fn $ident$(
        &self,
        request: tonic::Request<$request$>,
    ) -> std::result::Result<tonic::Response<BoxStream<$response$>>, tonic::Status> {
        Err(tonic::Status::unimplemented("Not yet implemented"))
    }
    """

CLIENT_STREAMING_TRAIT_FORMAT = r"""
    async fn $ident$(
        &self,
        request: tonic::Request<tonic::Streaming<$request$>>,
    ) -> std::result::Result<tonic::Response<$response$>, tonic::Status> {
        Err(tonic::Status::unimplemented("Not yet implemented"))
    }
    """

STREAMING_TRAIT_FORMAT = r"""
    async fn $ident$(
        &self,
        request: tonic::Request<tonic::Streaming<$request$>>,
    ) -> std::result::Result<tonic::Response<BoxStream<$response$>>, tonic::Status> {
        Err(tonic::Status::unimplemented("Not yet implemented"))
    }
    """

TRAIT_FORMATS: Dict[StreamingShape, str] = {
    StreamingShape.UNARY: UNARY_TRAIT_FORMAT,
    StreamingShape.SERVER_STREAMING: SERVER_STREAMING_TRAIT_FORMAT,
    StreamingShape.CLIENT_STREAMING: CLIENT_STREAMING_TRAIT_FORMAT,
    StreamingShape.BIDI_STREAMING: STREAMING_TRAIT_FORMAT,
}

# Everything after the per-shape service adapter is shared by every route.
_DISPATCH_TAIL = r"""
    let accept_compression_encodings = self.accept_compression_encodings;
    let send_compression_encodings = self.send_compression_encodings;
    let max_decoding_message_size = self.max_decoding_message_size;
    let max_encoding_message_size = self.max_encoding_message_size;
    let inner = self.inner.clone();
    let fut = async move {
        let method = $svc_ident$(inner);
        let codec = $codec_name$::default();
        let mut grpc = tonic::server::Grpc::new(codec)
            .apply_compression_config(
                accept_compression_encodings,
                send_compression_encodings,
            )
            .apply_max_message_size_config(
                max_decoding_message_size,
                max_encoding_message_size,
            );
        let res = grpc.$grpc_call$(method, req).await;
        Ok(res)
    };
    Box::pin(fut)
    """

UNARY_DISPATCH_FORMAT = r"""
    "$path$" => {
        #[allow(non_camel_case_types)]
        struct $svc_ident$<T: $server_trait$>(pub Arc<T>);
        impl<T: $server_trait$> tonic::server::UnaryService<$request$> for $svc_ident$<T> {
            type Response = $response$;
            type Future = BoxFuture<tonic::Response<Self::Response>, tonic::Status>;
            fn call(&mut self, request: tonic::Request<$request$>) -> Self::Future {
                let inner = Arc::clone(&self.0);
                let fut = async move {
                    <T as $server_trait$>::$ident$(&inner, request).await
                };
                Box::pin(fut)
            }
        }
        $dispatch_tail$
    }
    """

SERVER_STREAMING_DISPATCH_FORMAT = r"""
    "$path$" => {
        #[allow(non_camel_case_types)]
        struct $svc_ident$<T: $server_trait$>(pub Arc<T>);
        impl<T: $server_trait$> tonic::server::ServerStreamingService<$request$> for $svc_ident$<T> {
            type Response = $response$;
            type ResponseStream = BoxStream<$response$>;
            type Future = BoxFuture<tonic::Response<Self::ResponseStream>, tonic::Status>;
            fn call(&mut self, request: tonic::Request<$request$>) -> Self::Future {
                let inner = Arc::clone(&self.0);
                let fut = async move {
                    <T as $server_trait$>::$ident$(&inner, request).await
                };
                Box::pin(fut)
            }
        }
        $dispatch_tail$
    }
    """

CLIENT_STREAMING_DISPATCH_FORMAT = r"""
    "$path$" => {
        #[allow(non_camel_case_types)]
        struct $svc_ident$<T: $server_trait$>(pub Arc<T>);
        impl<T: $server_trait$> tonic::server::ClientStreamingService<$request$> for $svc_ident$<T> {
            type Response = $response$;
            type Future = BoxFuture<tonic::Response<Self::Response>, tonic::Status>;
            fn call(&mut self, request: tonic::Request<tonic::Streaming<$request$>>) -> Self::Future {
                let inner = Arc::clone(&self.0);
                let fut = async move {
                    <T as $server_trait$>::$ident$(&inner, request).await
                };
                Box::pin(fut)
            }
        }
        $dispatch_tail$
    }
    """

STREAMING_DISPATCH_FORMAT = r"""
    "$path$" => {
        #[allow(non_camel_case_types)]
        struct $svc_ident$<T: $server_trait$>(pub Arc<T>);
        impl<T: $server_trait$> tonic::server::StreamingService<$request$> for $svc_ident$<T> {
            type Response = $response$;
            type ResponseStream = BoxStream<$response$>;
            type Future = BoxFuture<tonic::Response<Self::ResponseStream>, tonic::Status>;
            fn call(&mut self, request: tonic::Request<tonic::Streaming<$request$>>) -> Self::Future {
                let inner = Arc::clone(&self.0);
                let fut = async move {
                    <T as $server_trait$>::$ident$(&inner, request).await
                };
                Box::pin(fut)
            }
        }
        $dispatch_tail$
    }
    """

DISPATCH_FORMATS: Dict[StreamingShape, str] = {
    StreamingShape.UNARY: UNARY_DISPATCH_FORMAT,
    StreamingShape.SERVER_STREAMING: SERVER_STREAMING_DISPATCH_FORMAT,
    StreamingShape.CLIENT_STREAMING: CLIENT_STREAMING_DISPATCH_FORMAT,
    StreamingShape.BIDI_STREAMING: STREAMING_DISPATCH_FORMAT,
}

GRPC_CALLS: Dict[StreamingShape, str] = {
    StreamingShape.UNARY: "unary",
    StreamingShape.SERVER_STREAMING: "server_streaming",
    StreamingShape.CLIENT_STREAMING: "client_streaming",
    StreamingShape.BIDI_STREAMING: "streaming",
}

SERVER_FORMAT = r"""
    /// Generated server implementations.
    pub mod $server_mod$ {
        #![allow(
            unused_variables,
            dead_code,
            missing_docs,
            clippy::wildcard_imports,
            // will trigger if compression is disabled
            clippy::let_unit_value,
        )]
        use tonic::codegen::*;

        $trait_doc$
        #[async_trait]
        pub trait $server_trait$: std::marker::Send + std::marker::Sync + 'static {
            $trait_methods$
        }

        $service_doc$
        #[derive(Debug)]
        pub struct $server_ident$<T> {
            inner: Arc<T>,
            accept_compression_encodings: EnabledCompressionEncodings,
            send_compression_encodings: EnabledCompressionEncodings,
            max_decoding_message_size: Option<usize>,
            max_encoding_message_size: Option<usize>,
        }

        impl<T> $server_ident$<T> {
            pub fn new(inner: T) -> Self {
                Self::from_arc(Arc::new(inner))
            }

            pub fn from_arc(inner: Arc<T>) -> Self {
                Self {
                    inner,
                    accept_compression_encodings: Default::default(),
                    send_compression_encodings: Default::default(),
                    max_decoding_message_size: None,
                    max_encoding_message_size: None,
                }
            }

            pub fn with_interceptor<F>(inner: T, interceptor: F) -> InterceptedService<Self, F>
            where
                F: tonic::service::Interceptor,
            {
                InterceptedService::new(Self::new(inner), interceptor)
            }

            /// Enable decompressing requests with the given encoding.
            #[must_use]
            pub fn accept_compressed(mut self, encoding: CompressionEncoding) -> Self {
                self.accept_compression_encodings.enable(encoding);
                self
            }

            /// Compress responses with the given encoding, if the client supports it.
            #[must_use]
            pub fn send_compressed(mut self, encoding: CompressionEncoding) -> Self {
                self.send_compression_encodings.enable(encoding);
                self
            }

            /// Limits the maximum size of a decoded message.
            ///
            /// Default: `4MB`
            #[must_use]
            pub fn max_decoding_message_size(mut self, limit: usize) -> Self {
                self.max_decoding_message_size = Some(limit);
                self
            }

            /// Limits the maximum size of an encoded message.
            ///
            /// Default: `usize::MAX`
            #[must_use]
            pub fn max_encoding_message_size(mut self, limit: usize) -> Self {
                self.max_encoding_message_size = Some(limit);
                self
            }
        }

        impl<T, B> tonic::codegen::Service<http::Request<B>> for $server_ident$<T>
        where
            T: $server_trait$,
            B: Body + std::marker::Send + 'static,
            B::Error: Into<StdError> + std::marker::Send + 'static,
        {
            type Response = http::Response<tonic::body::Body>;
            type Error = std::convert::Infallible;
            type Future = BoxFuture<Self::Response, Self::Error>;

            fn poll_ready(
                &mut self,
                _cx: &mut Context<'_>,
            ) -> Poll<std::result::Result<(), Self::Error>> {
                Poll::Ready(Ok(()))
            }

            fn call(&mut self, req: http::Request<B>) -> Self::Future {
                match req.uri().path() {
                    $dispatch_arms$
                    _ => {
                        Box::pin(async move {
                            let mut response = http::Response::new(tonic::body::Body::default());
                            let headers = response.headers_mut();
                            headers.insert(
                                tonic::Status::GRPC_STATUS,
                                (tonic::Code::Unimplemented as i32).into(),
                            );
                            headers.insert(
                                http::header::CONTENT_TYPE,
                                tonic::metadata::GRPC_CONTENT_TYPE,
                            );
                            Ok(response)
                        })
                    }
                }
            }
        }

        impl<T> Clone for $server_ident$<T> {
            fn clone(&self) -> Self {
                let inner = self.inner.clone();
                Self {
                    inner,
                    accept_compression_encodings: self.accept_compression_encodings,
                    send_compression_encodings: self.send_compression_encodings,
                    max_decoding_message_size: self.max_decoding_message_size,
                    max_encoding_message_size: self.max_encoding_message_size,
                }
            }
        }

        /// Generated gRPC service name
        pub const SERVICE_NAME: &str = "$service_name$";
        impl<T> tonic::server::NamedService for $server_ident$<T> {
            const NAME: &'static str = SERVICE_NAME;
        }
    }
    """


def server_module_name(service: Service) -> str:
    return f"{camel_to_snake_case(service.name)}_server"


def server_struct_name(service: Service) -> str:
    return f"{service.name}Server"


def service_adapter_name(method: Method) -> str:
    return f"{method.proto_name}Svc"


def _method_vars(method: Method, options: GenerationOptions) -> Dict[str, str]:
    return {
        "ident": method.name,
        "request": rs_type_path(method.input_type, options, SERVER_DEPTH),
        "response": rs_type_path(method.output_type, options, SERVER_DEPTH),
    }


def generate_trait_methods(printer: Printer, service: Service, options: GenerationOptions) -> None:
    for index, method in enumerate(service.methods):
        if index:
            printer.write_raw("\n")
        printer.write_raw(proto_comment_to_rust_doc(method.comment))
        printer.emit(TRAIT_FORMATS[method.streaming_shape], _method_vars(method, options))


def generate_dispatch_arm(
    printer: Printer, service: Service, method: Method, options: GenerationOptions
) -> None:
    """Emit the ``match`` arm routing *method*'s path to the trait implementation."""

    shape = method.streaming_shape
    variables = _method_vars(method, options)
    variables.update(
        {
            "path": method_path(service, method),
            "svc_ident": service_adapter_name(method),
            "server_trait": service.name,
            "codec_name": CODEC_NAME,
            "grpc_call": GRPC_CALLS[shape],
        }
    )
    with printer.with_vars(variables):
        printer.emit(
            DISPATCH_FORMATS[shape],
            {"dispatch_tail": lambda: printer.emit(_DISPATCH_TAIL)},
        )


def generate_dispatch_arms(printer: Printer, service: Service, options: GenerationOptions) -> None:
    for method in service.methods:
        generate_dispatch_arm(printer, service, method, options)


def generate_server(printer: Printer, service: Service, options: GenerationOptions) -> None:
    """Emit the ``<service>_server`` module for *service*."""

    server_ident = server_struct_name(service)
    printer.emit(
        SERVER_FORMAT,
        {
            "server_mod": server_module_name(service),
            "server_trait": service.name,
            "server_ident": server_ident,
            "service_name": service.full_name,
            "trait_doc": rust_doc_line(
                "Generated trait containing gRPC methods that should be implemented "
                f"for use with {server_ident}."
            ),
            "service_doc": proto_comment_to_rust_doc(service.comment),
            "trait_methods": lambda: generate_trait_methods(printer, service, options),
            "dispatch_arms": lambda: generate_dispatch_arms(printer, service, options),
        },
    )


__all__ = [
    "DISPATCH_FORMATS",
    "GRPC_CALLS",
    "TRAIT_FORMATS",
    "generate_dispatch_arm",
    "generate_server",
    "generate_trait_methods",
    "server_module_name",
    "server_struct_name",
    "service_adapter_name",
]
